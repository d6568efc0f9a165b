"""pscdeploy - cross-project GCP deployment over Private Service Connect"""

__version__ = "1.0.0"
