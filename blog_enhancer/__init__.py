# Blog enhancer: scrapes blog articles and rewrites them with an LLM,
# using top search results as references.
#
# Modules are imported directly where needed, e.g.
# from blog_enhancer.orchestrator import Orchestrator
import logging

# Applications (main.py) configure their own logging through
# blog_enhancer.utils.setup_logging; library use stays silent by default.
logger = logging.getLogger(__name__)
if not logger.hasHandlers():
    logger.addHandler(logging.NullHandler())
