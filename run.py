import uvicorn
from vpnsettings.config import load_app_config
from vpnsettings.logging_utility import logger


if __name__=='__main__':
    config = load_app_config()
    logger.info("Starting VPN settings service")
    uvicorn.run("vpnsettings.main:create_app", factory=True, host=config.host, port=config.port, reload=True)
