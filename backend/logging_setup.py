import logging


def configure_logging(level_name: str = 'INFO') -> None:
    """Configure the root logger once; later calls only adjust the level."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    formatter = logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s')
    root_logger = logging.getLogger()

    if root_logger.handlers:
        root_logger.setLevel(level)
        for handler in root_logger.handlers:
            handler.setLevel(level)
            handler.setFormatter(formatter)
        return

    logging.basicConfig(level=level)
    for handler in root_logger.handlers:
        handler.setFormatter(formatter)
