"""Allow ``python -m ctsl``."""

from ctsl.main import main

if __name__ == "__main__":
    raise SystemExit(main())
