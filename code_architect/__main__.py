"""Allow ``python -m code_architect``."""

from code_architect.cli import main

if __name__ == "__main__":
    main()
