"""Logging setup with a per-run correlation id."""

import contextvars
import logging
import secrets
import string
import time

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [%(run_id)s]: %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
_ALPHABET = string.ascii_lowercase + string.digits

# Libraries that log request bodies or credentials at DEBUG/INFO.
_NOISY_LOGGERS = ("googleapiclient", "google.auth", "urllib3", "httpx", "httpcore")

_current_run_id: contextvars.ContextVar[str] = contextvars.ContextVar("run_id", default="-")


def new_run_id() -> str:
    """Return an id like ``run-1718000000000-k3j9xq``."""
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(6))
    return f"run-{int(time.time() * 1000)}-{suffix}"


class RunIdFilter(logging.Filter):
    """Stamps every record with the run id of the context that emitted it.

    A fixed ``run_id`` passed to the constructor overrides the context value.
    """

    def __init__(self, run_id: str | None = None) -> None:
        super().__init__()
        self.run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = self.run_id or _current_run_id.get()
        return True


def setup_logging(verbose: bool = False) -> None:
    """Configure the root logger once; later calls only adjust the level."""
    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger()
    root.setLevel(level)

    if not any(getattr(h, "_job_alerts", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FMT))
        handler.addFilter(RunIdFilter())
        handler._job_alerts = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_run_id(run_id: str) -> contextvars.Token[str]:
    """Attach ``run_id`` to log lines emitted from the current context.

    Every asyncio task and every ``asyncio.to_thread`` call works on a copy
    of the context, so concurrent runs keep their own id.
    """
    return _current_run_id.set(run_id)


def reset_run_id(token: contextvars.Token[str]) -> None:
    _current_run_id.reset(token)


def current_run_id() -> str:
    return _current_run_id.get()
