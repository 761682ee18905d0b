"""
Where the pipeline sends what it finds.

The core never prints. It calls a Reporter, and main.py decides whether that
ends up on the console, in the log file, or in a list for tests.
"""
from rich.console import Console

from utils.logger import log_message


class Reporter:
    """Do-nothing reporter, subclass and override what you need"""

    def error(self, result):
        pass

    def anomaly(self, result):
        pass

    def warning(self, warning):
        pass


class CollectingReporter(Reporter):
    def __init__(self):
        self.errors = []
        self.anomalies = []
        self.warnings = []

    def error(self, result):
        self.errors.append(result)

    def anomaly(self, result):
        self.anomalies.append(result)

    def warning(self, warning):
        self.warnings.append(warning)


class ConsoleReporter(CollectingReporter):
    """Rich console output mirrored into the log file"""

    def __init__(self, console=None, log=True):
        super().__init__()
        self.console = console or Console()
        self.log = log

    def _log(self, text):
        if not self.log:
            return
        try:
            log_message(text)
        except OSError as e:
            self.console.print(f"[yellow]Warning: Logging error: {e}[/]")

    def error(self, result):
        super().error(result)
        self.console.print(f"[red]✗[/] Error for payload {result.payload}: {result.error}")
        self._log(f"[ERROR] payload={result.payload} error={result.error}")

    def anomaly(self, result):
        super().anomaly(result)
        res = result.response
        self.console.print(
            f"[bold red]●[/] Payload [bold]{result.payload}[/] caused an anomaly "
            f"(status {res.status_code}, length {res.headers.get('Content-Length', '?')})"
        )
        self._log(f"[ANOMALY] payload={result.payload} status={res.status_code}")

    def warning(self, warning):
        super().warning(warning)
        self.console.print(f"[yellow]Warning: {warning}[/]")
        self._log(f"[WARNING] {warning}")
