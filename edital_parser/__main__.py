"""
Module entry point for: python -m edital_parser

Allows running the parser directly as a module:
    python -m edital_parser parse <path> [options]
    python -m edital_parser diagnose <path>
    python -m edital_parser serve [options]
"""

from .cli import cli


def main():
    cli()


if __name__ == "__main__":
    main()
