import logging
import sys
from typing import Annotated
from dishka import Provider, provide, Scope, FromComponent
from core.environment.config import Settings


LOGGER_NAME = "holdings_api"


class LoggerProvider(Provider):
    """
    Provider for logging configuration and logger instances.

    Configures logging to output to console (stdout) with the level
    taken from settings (INFO by default).
    """
    component = "logger"

    @provide(scope=Scope.APP)
    def get_logger(
        self,
        settings: Annotated[Settings, FromComponent("environment")]
    ) -> logging.Logger:
        """
        Provide configured logger instance.

        Parameters
        ----------
        settings : Settings
            Application settings

        Returns
        -------
        logging.Logger
            Configured logger that writes to console
        """
        level = logging.getLevelName(settings.log_level.upper())
        if not isinstance(level, int):
            level = logging.INFO

        if not logging.getLogger().handlers:
            logging.basicConfig(
                level=level,
                format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                handlers=[
                    logging.StreamHandler(sys.stdout)
                ]
            )

        logger = logging.getLogger(LOGGER_NAME)
        logger.setLevel(level)
        return logger
