"""Device approval service runner - combines the expiration sweeper with FastAPI."""

import asyncio
import logging
import sys
from concurrent.futures import ThreadPoolExecutor

import uvicorn

from device_approval.api.app import create_app
from device_approval.config import DeviceApprovalConfig
from device_approval.db.database import get_session, init_db
from device_approval.db.repository import DeviceRepository
from device_approval.facade import DeviceFacade
from device_approval.lifecycle import LifecycleEngine
from device_approval.sweeper import ExpirationSweeper

# Global config for health check access
_config: DeviceApprovalConfig | None = None

logger = logging.getLogger(__name__)


class DeviceApprovalService:
    """Main service that runs the API server and the expiration sweeper."""

    def __init__(self, config: DeviceApprovalConfig):
        global _config
        _config = config
        self.config = config
        self.sweeper: ExpirationSweeper | None = None
        self.executor: ThreadPoolExecutor | None = None

    def _setup_logging(self):
        """Configure logging."""
        logging.basicConfig(
            level=getattr(logging, self.config.log_level.upper()),
            format="%(name)s %(message)s",
            stream=sys.stdout,
            force=True,
        )

    def build_engine(self) -> LifecycleEngine:
        """Create a lifecycle engine over the configured database."""
        session = get_session(self.config.database_url, self.config.isolation_level)
        repository = DeviceRepository(session)
        return LifecycleEngine(
            repository,
            approval_window=self.config.approval_window,
            default_extension_days=self.config.default_extension_days,
        )

    def _run_sweeper(self):
        """Run the expiration sweeper in a thread."""
        try:
            self.sweeper.run()
        except Exception as e:
            logger.error("Expiration sweeper error: %s", e)
            raise

    async def start(self):
        """Start the API server and, if enabled, the sweeper."""
        self._setup_logging()

        logger.info("Starting device approval service...")
        logger.info("API port: %d", self.config.api_port)
        logger.info("Database: %s", self.config.database_url)
        logger.info("Approval window: %s", self.config.approval_window)

        # Initialize database
        init_db(self.config.database_url, self.config.isolation_level)

        engine = self.build_engine()
        # Manual sweeps from the API share the background sweeper's lock
        self.sweeper = ExpirationSweeper(engine, interval=self.config.sweep_interval)
        app = create_app(DeviceFacade(engine), self.sweeper)

        tasks = []

        # Start sweeper in dedicated thread
        if self.config.sweep_enabled:
            self.executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="device-sweeper")
            loop = asyncio.get_running_loop()
            tasks.append(loop.run_in_executor(self.executor, self._run_sweeper))
        else:
            logger.info("Expiration sweeper disabled")

        # Start FastAPI server
        api_config = uvicorn.Config(
            app,
            host=self.config.api_host,
            port=self.config.api_port,
            log_level=self.config.log_level.lower(),
        )
        api_server = uvicorn.Server(api_config)

        try:
            await api_server.serve()
        except KeyboardInterrupt:
            logger.info("Shutting down...")
        finally:
            if tasks:
                self.sweeper.stop()
                await asyncio.gather(*tasks, return_exceptions=True)
            if self.executor:
                self.executor.shutdown(wait=False)


def main():
    """Entry point."""
    try:
        from importlib.metadata import version

        package_version = version("device-approval")
    except Exception:
        package_version = "1.0.0"

    print(f"Device Approval Service v{package_version}")

    config = DeviceApprovalConfig()
    service = DeviceApprovalService(config)
    asyncio.run(service.start())


if __name__ == "__main__":
    main()
