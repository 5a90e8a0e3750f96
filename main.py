#!/usr/bin/env python3
from switchrun.cli import app

if __name__ == "__main__":
    app()
