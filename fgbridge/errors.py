from typing import Iterable, List


class ConfigError(ValueError):
    """Invalid bridge configuration; carries every problem that was found."""

    def __init__(self, problems: Iterable[str]):
        self.problems: List[str] = list(problems)
        super().__init__("; ".join(self.problems))


class SerialPortNotFound(ConfigError):
    def __init__(self, port: str):
        self.port = port
        super().__init__([f"Could not find a serial port with the name '{port}'"])
