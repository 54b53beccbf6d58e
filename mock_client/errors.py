class ConfigurationError(ValueError):
    """Raised when run parameters cannot be resolved into a schedule."""

    def __init__(self, argument_name: str, value, message: str):
        self.argument_name = argument_name
        self.value = value
        self.message = message
        super().__init__(f'Invalid value "{value}" for argument {argument_name}. {message}')
