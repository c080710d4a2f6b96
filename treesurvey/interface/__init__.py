"""Mini README: Interactive interfaces for treesurvey.

Exports the FastAPI application factory used by the capture client. The
command line lives in ``main_survey_station.py`` at the repository root.
"""

from .web_app import create_application

__all__ = ["create_application"]
