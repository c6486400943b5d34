APP_NAME = "Interview Pipeline"
APP_VERSION = "0.4.0"
