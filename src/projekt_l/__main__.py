"""Allow ``python -m projekt_l`` to start the server."""

from .main import main

if __name__ == "__main__":
    main()
