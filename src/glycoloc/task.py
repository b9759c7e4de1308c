import logging
import pprint
import threading
import traceback
import warnings

from datetime import datetime
from typing import Callable, Optional

from glycoloc.version import version


logger = logging.getLogger("glycoloc.task")
logger.addHandler(logging.NullHandler())


def display_version(print_fn):
    msg = "glycoloc: version %s" % version
    print_fn(msg)


def fmt_msg(*message):
    return u"%s %s" % (datetime.now().isoformat(' '), u', '.join(map(str, message)))


def printer(obj, *message, stacklevel=None):
    print(fmt_msg(*message))


def debug_printer(obj, *message, stacklevel=None):
    if obj.in_debug_mode():
        print(u"DEBUG:" + fmt_msg(*message))


class CallInterval(object):
    """Call a function every `interval` seconds from
    a separate thread.

    Attributes
    ----------
    stopped: threading.Event
        A semaphore lock that controls when to run `call_target`
    call_target: callable
        The thing to call every `interval` seconds
    args: iterable
        Arguments for `call_target`
    interval: number
        Time between calls to `call_target`
    """

    def __init__(self, interval: float, call_target: Callable, *args):
        self.stopped = threading.Event()
        self.interval = interval
        self.call_target = call_target
        self.args = args
        self.thread = threading.Thread(target=self.mainloop)
        self.thread.daemon = True

    def mainloop(self):
        while not self.stopped.wait(self.interval):
            try:
                self.call_target(*self.args)
            except Exception as e:
                logger.exception("An error occurred in %r", self, exc_info=e)

    def start(self):
        self.thread.start()

    def stop(self):
        self.stopped.set()


def humanize_class_name(name):
    parts = []
    i = 0
    last = 0
    while i < len(name):
        c = name[i]
        if c.isupper() and i != last:
            if i + 1 < len(name):
                if name[i + 1].islower():
                    part = name[last:i]
                    parts.append(part)
                    last = i
        i += 1
    parts.append(name[last:i])
    return ' '.join(parts)


class LoggingMixin(object):
    logger_state = None
    print_fn = printer
    debug_print_fn = debug_printer
    error_print_fn = printer
    warn_print_fn = warnings.warn

    _debug_enabled = None

    @classmethod
    def log_with_logger(cls, logger):
        cls.logger_state = logger
        cls.print_fn = logger.info
        cls.debug_print_fn = logger.debug
        cls.error_print_fn = logger.error
        cls.warn_print_fn = logger.warning

    def instance_log_with_logger(self, logger):
        self.logger_state = logger
        self.print_fn = logger.info
        self.debug_print_fn = logger.debug
        self.error_print_fn = logger.error
        self.warn_print_fn = logger.warning

    @classmethod
    def log_to_stdout(cls):
        cls.logger_state = None
        cls.print_fn = printer
        cls.debug_print_fn = debug_printer
        cls.error_print_fn = printer
        cls.warn_print_fn = warnings.warn

    def log(self, *message):
        self.print_fn(u', '.join(map(str, message)), stacklevel=2)

    def debug(self, *message):
        self.debug_print_fn(u', '.join(map(str, message)), stacklevel=2)

    def error(self, *message, **kwargs):
        exception = kwargs.get("exception")
        self.error_print_fn(u', '.join(map(str, message)), stacklevel=2)
        if exception is not None:
            self.error_print_fn(traceback.format_exc())

    def warn(self, *message, **kwargs):
        self.warn_print_fn(u', '.join(map(str, message)), stacklevel=2)

    def in_debug_mode(self):
        if self._debug_enabled is None:
            logger_state = self.logger_state
            if logger_state is not None:
                self._debug_enabled = logger_state.isEnabledFor(logging.DEBUG)
            else:
                from glycoloc.config.config_file import DEBUG_MODE
                self._debug_enabled = DEBUG_MODE
        return bool(self._debug_enabled)


class TaskBase(LoggingMixin):
    """A base class for a discrete, named step in a pipeline that
    executes in sequence.

    Attributes
    ----------
    display_fields : bool
        Whether to display fields at the start of execution
    end_time : datetime.datetime
        The time when the task ended
    logger_state : logging.Logger
        The Logger bound to this task
    start_time : datetime.datetime
        The time when the task began
    status : str
        The state of the executing task
    """

    status = "new"

    display_fields = True

    _display_name = None

    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def display_name(self):
        if self._display_name is None:
            return humanize_class_name(self.__class__.__name__)
        else:
            return self._display_name

    def _format_fields(self):
        if self.display_fields:
            return '\n' + pprint.pformat(
                {k: v for k, v in self.__dict__.items()
                 if not (k.startswith("_") or v is None)})
        else:
            return ''

    def display_header(self):
        display_version(self.log)

    def _begin(self, verbose=True, *args, **kwargs):
        self.on_begin()
        self.start_time = datetime.now()
        self.status = "started"
        if verbose:
            self.log(
                "Begin %s%s" % (
                    self.display_name,
                    self._format_fields()))

    def _end(self, verbose=True, *args, **kwargs):
        self.on_end()
        self.end_time = datetime.now()
        if verbose:
            self.log("End %s" % self.display_name)
            self.log(self.summarize())

    def on_begin(self):
        pass

    def on_end(self):
        pass

    def summarize(self):
        chunks = [
            "Started at %s." % self.start_time,
            "Ended at %s." % self.end_time,
            "Total time elapsed: %s" % (self.end_time - self.start_time),
            "%s completed successfully." % self.__class__.__name__ if self.status == 'completed' else
            "%s failed with error message %r" % (self.__class__.__name__, self.status),
            ''
        ]
        return '\n'.join(chunks)

    def run(self):
        raise NotImplementedError()

    def start(self, *args, **kwargs):
        self._begin(*args, **kwargs)
        try:
            out = self.run()
        except (KeyboardInterrupt) as e:
            logger.exception("An error occurred: %r", e, exc_info=e)
            self.status = e
            out = e
            raise e
        else:
            self.status = 'completed'
        self._end(*args, **kwargs)
        return out

