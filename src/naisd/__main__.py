"""Allow ``python -m naisd``."""

from naisd.main import run

if __name__ == "__main__":
    run()
