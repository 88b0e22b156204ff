import logging

from .integrity import TreeIntegrityChecker, TreeIntegrityReport

LOGGER = logging.getLogger(__name__)


class StartupDiagnostics:
    """Runs the tree integrity check when the application starts.

    Problems are only logged; the application starts regardless, and a
    failing check is logged rather than blocking startup.
    """

    def __init__(self, checker: TreeIntegrityChecker):
        self.checker = checker
        self.last_report: TreeIntegrityReport | None = None

    async def on_startup(self) -> None:
        try:
            self.last_report = await self.checker.check()
        except Exception:
            LOGGER.exception("Tree integrity check failed at startup")

    async def on_shutdown(self) -> None:
        pass
