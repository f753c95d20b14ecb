"""Module entrypoint for `python -m hexstorm`."""

from hexstorm.cli import main


if __name__ == "__main__":
    main()
