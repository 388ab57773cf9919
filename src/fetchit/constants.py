APP_NAME = "fetchit"
