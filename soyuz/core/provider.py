import datetime
import inspect
import logging.config
import typing as t

TRACE = 5

TimestampProvider = t.Callable[[], datetime.datetime]


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class Logger(logging.Logger):
    """`logging.Logger` with a `trace()` method below DEBUG, for retry and backup chatter."""

    def trace(self, message: str, *args: t.Any, **kwargs: t.Any):
        if self.isEnabledFor(TRACE):
            self._log(TRACE, message, args, **kwargs)


def trace(msg: str, *args: t.Any, **kwargs: t.Any):
    if len(logging.root.handlers) == 0:
        logging.basicConfig()
    t.cast(Logger, logging.root).trace(msg, *args, **kwargs)


class LoggingProvider(object):
    Function: t.Final[t.Literal["fn"]] = "fn"
    Class: t.Final[t.Literal["cls"]] = "cls"
    Module: t.Final[t.Literal["mod"]] = "mod"

    def __init__(self, config: dict[str, t.Any], debug: bool):
        LoggingProvider.create_trace_loglevel()
        logging.config.dictConfig(config)
        if debug:
            self.capture_warnings(True)

    @staticmethod
    def create_trace_loglevel():
        """
        Register TRACE below DEBUG and install `Logger` as the logger class
        """
        logging.setLoggerClass(Logger)
        logging.addLevelName(TRACE, "TRACE")
        logging.TRACE = TRACE  # pyright: ignore [reportAttributeAccessIssue]
        logging.trace = trace  # pyright: ignore [reportAttributeAccessIssue]

    @classmethod
    def get_logger(
        cls, scope: t.Literal["mod", "cls", "fn"] = "mod", name: str | None = None, n_frames: int = 1
    ) -> Logger:
        if name:
            return t.cast(Logger, logging.getLogger(name))

        frame = inspect.stack()[n_frames]
        module = frame.frame.f_globals["__name__"]
        owner = frame.frame.f_locals.get("self")
        owner_cls = type(owner) if owner is not None else frame.frame.f_locals.get("cls")

        match scope:
            case cls.Module:
                name = module

            case cls.Function:
                if isinstance(owner_cls, type):
                    name = f"{module}.{owner_cls.__name__}.{frame.function}"
                else:
                    name = f"{module}.{frame.function}"

            case cls.Class:
                if not isinstance(owner_cls, type):
                    raise RuntimeError("could not determine class")
                name = f"{owner_cls.__module__}.{owner_cls.__name__}"

        return t.cast(Logger, logging.getLogger(name))

    @staticmethod
    def capture_warnings(capture: bool):
        logging.captureWarnings(capture)
