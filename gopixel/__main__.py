"""Allow gopixel to be executable through `python -m gopixel`."""
from gopixel.cli import cli


if __name__ == "__main__":  # pragma: no cover
    cli(prog_name="gopixel")
