"""Entry point for running the task-capture CLI as a module.

Usage:
    python -m taskcapture validate-config
    python -m taskcapture --help
"""

from dotenv import load_dotenv

load_dotenv()  # Load .env (provider API keys) before any other imports

from taskcapture.cli import main  # noqa: E402

if __name__ == "__main__":
    main()
