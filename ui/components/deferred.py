from concurrent.futures import Future

from loguru import logger

from services.call_boundary import CallBoundary


def run_deferred(widget, boundary: CallBoundary, fn, *args, on_done=None, on_error=None) -> Future:
    """Run fn on the worker and hand its outcome back on the Tk thread.

    on_done gets the return value, on_error the exception. With no on_error
    the failure is logged.
    """
    future = boundary.submit(fn, *args)

    def finished(f: Future):
        error = f.exception()
        value = None if error else f.result()

        def deliver():
            if not widget.winfo_exists():
                return
            if error is None:
                if on_done:
                    on_done(value)
            elif on_error:
                on_error(error)
            else:
                logger.opt(exception=error).error(f"Background call {fn.__name__} failed")

        widget.after(0, deliver)

    future.add_done_callback(finished)
    return future
