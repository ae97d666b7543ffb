import os

# Point the module-level engine at a throwaway database before any app import.
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["API_KEYS"] = ""
os.environ["JWT_SECRET"] = ""
os.environ["JWT_REQUIRED"] = "false"
