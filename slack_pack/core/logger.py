import contextvars
import logging

correlation_id_var = contextvars.ContextVar("correlation_id", default="-")


def set_correlation_id(corr_id: str) -> None:
    correlation_id_var.set(corr_id)


def get_correlation_id() -> str:
    return correlation_id_var.get()


class ContextualColorFormatter(logging.Formatter):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    MAGENTA = "\033[35m"
    GRAY = "\033[90m"

    LEVEL_COLOR = {
        "DEBUG": CYAN,
        "INFO": GREEN,
        "WARNING": YELLOW,
        "ERROR": RED,
        "CRITICAL": MAGENTA,
    }

    STANDARD_ATTRS = set(logging.LogRecord(
        name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
    ).__dict__.keys()) | {"correlation_id", "message", "asctime"}

    def format(self, record):
        record.correlation_id = get_correlation_id()

        # colors are applied to a copy so other handlers see the plain record
        colored = logging.makeLogRecord(record.__dict__)
        color = self.LEVEL_COLOR.get(record.levelname, self.RESET)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        colored.name = f"{self.BLUE}{record.name}{self.RESET}"

        base_message = super().format(colored)

        extras = {
            k: v for k, v in record.__dict__.items()
            if k not in self.STANDARD_ATTRS
        }

        if not extras:
            return base_message

        max_key_len = max(len(k) for k in extras)
        extra_lines = "\n".join(
            f"    {self.GRAY}{k.ljust(max_key_len)}{self.RESET} = {v!r}" for k, v in extras.items()
        )
        return f"{base_message}\n{self.CYAN}Extras:{self.RESET}\n{extra_lines}"


def get_logger(name: str = "SlackPack", level: int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(ContextualColorFormatter(
            "[%(name)s] [%(asctime)s] [%(levelname)s] [corr_id=%(correlation_id)s] %(message)s"
        ))
        logger.addHandler(handler)

    return logger
