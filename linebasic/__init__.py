"""
linebasic - An interpreter for line-numbered, classic-style BASIC programs.

This package provides the loader (line splitting and statement parsing),
an expression evaluator, and an executor that runs a loaded program.
"""

__version__ = "0.1.0"
__author__ = "linebasic Project"
