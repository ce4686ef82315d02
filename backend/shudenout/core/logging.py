import logging
import sys

_LOGGING_CONFIGURED = False


def configure_logging(level: str = "INFO") -> None:
    """
    Configure process-wide logging once.
    Safe to call multiple times (tests build several apps).
    """
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        stream=sys.stdout,
    )
    # retries and connection errors are logged by the guardrail
    logging.getLogger("urllib3").setLevel(logging.ERROR)

    _LOGGING_CONFIGURED = True
