# facturador/application/step_runner.py
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from typing import Any, Callable, Optional

from facturador.domain.models.errors import StepTimeout


class StepRunner:
    """
    Ejecuta cada llamada externa con un tiempo máximo. Si se agota, el paso
    se considera fallido. Una llamada que ya empezó NO se cancela: puede seguir
    y llegar a destino (por ejemplo, un pedido de CAE tardío). Una que seguía
    en cola esperando un hilo libre se cancela y nunca se ejecuta.

    Con ``isolated=True`` la llamada corre en un hilo propio y no compite con
    las que quedaron colgadas en el pool compartido.
    """

    def __init__(self, max_workers: int = 8):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="facturador-step")

    def run(
        self,
        step: str,
        fn: Callable[..., Any],
        *args,
        timeout: Optional[float] = None,
        isolated: bool = False,
        **kwargs,
    ) -> Any:
        if timeout is None:
            return fn(*args, **kwargs)
        executor = self._executor
        if isolated:
            executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="facturador-isolated")
        future = executor.submit(fn, *args, **kwargs)
        try:
            return future.result(timeout=timeout)
        except FuturesTimeout:
            # cancel() solo tiene efecto si la llamada todavía no arrancó
            if future.cancel():
                logging.warning(f"Paso '{step}' superó {timeout:g}s en cola; se canceló sin ejecutarse.")
                raise StepTimeout(step, timeout, started=False) from None
            logging.warning(f"Paso '{step}' superó {timeout:g}s; la llamada sigue en curso y no se espera su respuesta.")
            raise StepTimeout(step, timeout, started=True) from None
        finally:
            if isolated:
                executor.shutdown(wait=False)

    def shutdown(self):
        self._executor.shutdown(wait=False)


class Watchdog:
    """Aviso único si el procesamiento total supera el umbral. Nunca interrumpe."""

    def __init__(self, seconds: Optional[float], on_timeout: Callable[[], Any]):
        self._timer = None
        if seconds:
            self._timer = threading.Timer(seconds, self._fire, args=(on_timeout,))
            self._timer.daemon = True

    @staticmethod
    def _fire(on_timeout):
        try:
            on_timeout()
        except Exception:
            logging.warning("El aviso del watchdog falló.", exc_info=True)

    def __enter__(self):
        if self._timer is not None:
            self._timer.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._timer is not None:
            self._timer.cancel()
        return False
