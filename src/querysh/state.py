class AppState:
    """Process-wide flags set once by the CLI callback."""

    def __init__(self):
        self.verbose_mode: bool = False


APP_STATE = AppState()
