"""Pause toggling, keyboard input and shutdown handling for the Lobby Watcher"""

import _thread
import atexit
import logging
import os
import signal
import sys
import threading
from typing import Callable, Optional, TextIO

logger = logging.getLogger(__name__)

try:
    import termios
    import tty
    HAS_TERMIOS = True
except ImportError:  # Windows
    HAS_TERMIOS = False

TERMINATION_SIGNALS = ("SIGINT", "SIGTERM", "SIGUSR1", "SIGUSR2")


class PauseController:
    """Two-state RUNNING/PAUSED flag shared between the keyboard thread and the crawl loop"""

    def __init__(self, poll_interval: float = 0.1):
        """Initialize pause controller

        Args:
            poll_interval: Seconds between re-checks while paused
        """
        self.poll_interval = poll_interval
        self._running = threading.Event()
        self._running.set()

    @property
    def is_paused(self) -> bool:
        return not self._running.is_set()

    def pause(self) -> None:
        self._running.clear()

    def resume(self) -> None:
        self._running.set()

    def toggle(self) -> bool:
        """Flip the state

        Returns:
            True if now paused
        """
        if self.is_paused:
            self.resume()
        else:
            self.pause()
        paused = self.is_paused
        logger.info("Paused.\n" if paused else "Unpaused.\n")
        return paused

    def wait_if_paused(self) -> None:
        """Yield point: block until RUNNING, re-checking every poll_interval"""
        while not self._running.wait(self.poll_interval):
            pass


class KeyboardListener:
    """Reads single keys from the terminal on a daemon thread"""

    def __init__(
        self,
        pause_controller: PauseController,
        pause_key: str = " ",
        interrupt_key: str = "\x03",
        stream: Optional[TextIO] = None,
        on_interrupt: Optional[Callable[[], None]] = None,
    ):
        """Initialize keyboard listener

        Args:
            pause_controller: Controller toggled by pause_key
            pause_key: Key that toggles the pause
            interrupt_key: Key that ends the process (Ctrl-C when read raw)
            stream: Input stream (defaults to sys.stdin)
            on_interrupt: Called on interrupt_key (defaults to interrupting the main thread)
        """
        self.pause_controller = pause_controller
        self.pause_key = pause_key
        self.interrupt_key = interrupt_key
        self.stream = stream if stream is not None else sys.stdin
        self.on_interrupt = on_interrupt or _thread.interrupt_main
        self._thread: Optional[threading.Thread] = None
        self._saved_tty = None
        self._stopped = threading.Event()

    def start(self) -> bool:
        """Start listening

        Returns:
            True if the listener thread was started
        """
        if self._thread and self._thread.is_alive():
            return True

        self._enter_cbreak_mode()
        self._stopped.clear()
        self._thread = threading.Thread(target=self._listen, name="keyboard-listener", daemon=True)
        self._thread.start()
        logger.info("You can pause manually with SPACE key.\n")
        return True

    def stop(self) -> None:
        """Stop reacting to keys and restore the terminal"""
        self._stopped.set()
        self._restore_terminal()

    def handle_key(self, key: str) -> None:
        if key == self.interrupt_key:
            logger.debug("Interrupt key received")
            self.on_interrupt()
        elif key == self.pause_key:
            self.pause_controller.toggle()

    def _listen(self) -> None:
        while not self._stopped.is_set():
            key = self.stream.read(1)
            if not key:
                logger.debug("Keyboard input closed")
                return
            if self._stopped.is_set():
                return
            self.handle_key(key)

    def _enter_cbreak_mode(self) -> None:
        if not HAS_TERMIOS:
            return
        try:
            fd = self.stream.fileno()
        except (AttributeError, OSError, ValueError):
            return
        if not os.isatty(fd):
            return
        self._saved_tty = (fd, termios.tcgetattr(fd))
        tty.setcbreak(fd)

    def _restore_terminal(self) -> None:
        if not self._saved_tty:
            return
        fd, attributes = self._saved_tty
        self._saved_tty = None
        try:
            termios.tcsetattr(fd, termios.TCSADRAIN, attributes)
        except termios.error as e:
            logger.debug(f"Could not restore terminal: {e}")


class ShutdownManager:
    """Runs browser teardown exactly once from every termination path"""

    def __init__(self, browser_manager, keyboard_listener: Optional[KeyboardListener] = None):
        """Initialize shutdown manager

        Args:
            browser_manager: BrowserManager whose resources are released
            keyboard_listener: Listener whose terminal mode is restored first
        """
        self.browser = browser_manager
        self.keyboard_listener = keyboard_listener
        self._lock = threading.RLock()
        self._done = False
        self._previous_excepthook = None
        self._previous_thread_excepthook = None

    @property
    def has_run(self) -> bool:
        return self._done

    def install(self) -> None:
        """Register atexit, signal and uncaught-exception handlers"""
        atexit.register(self.shutdown)

        for name in TERMINATION_SIGNALS:
            signum = getattr(signal, name, None)
            if signum is not None:
                signal.signal(signum, self._handle_signal)

        self._previous_excepthook = sys.excepthook
        sys.excepthook = self._handle_exception

        self._previous_thread_excepthook = threading.excepthook
        threading.excepthook = self._handle_thread_exception

        logger.debug("Shutdown handlers installed")

    def shutdown(self) -> None:
        """Release terminal and browser resources; safe to call any number of times"""
        with self._lock:
            if self._done:
                return
            self._done = True

        logger.debug("Shutting down...")

        if self.keyboard_listener:
            try:
                self.keyboard_listener.stop()
            except Exception as e:
                logger.debug(f"Error stopping keyboard listener: {e}")

        try:
            self.browser.close()
        except Exception as e:
            logger.error(f"Error during browser teardown: {e}")

    def _handle_signal(self, signum, frame) -> None:
        if self._done:
            # Teardown is already running and must finish
            logger.debug(f"Ignoring signal {signum} during shutdown")
            return
        logger.warning(f"Received signal {signum}, shutting down")
        self.shutdown()
        if signum == getattr(signal, "SIGINT", None):
            raise KeyboardInterrupt
        raise SystemExit(128 + signum)

    def _handle_exception(self, exc_type, exc_value, exc_tb) -> None:
        self.shutdown()
        if self._previous_excepthook:
            self._previous_excepthook(exc_type, exc_value, exc_tb)

    def _handle_thread_exception(self, args) -> None:
        self.shutdown()
        if self._previous_thread_excepthook:
            self._previous_thread_excepthook(args)
