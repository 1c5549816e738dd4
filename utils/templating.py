import os
from fastapi.templating import Jinja2Templates

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(BASE_DIR)
TEMPLATES_DIR = os.path.join(PROJECT_ROOT, "templates")

NOTICE_TYPES = {"success", "error", "info", "warning"}

templates = Jinja2Templates(directory=TEMPLATES_DIR)
