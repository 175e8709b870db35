#!/usr/bin/env python3
"""
BASIC interpreter entry point.

Usage: python linebasic.py program[.bas] [--trace FILE] [--symbols] [--time]
"""

from linebasic.interpreter import main

if __name__ == '__main__':
    main()
