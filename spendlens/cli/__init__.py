"""Unified command-line interface for spendlens.

Usage:
    spendlens [-v] <command> ...
    spendlens receipt <file> [--ocr] [--parser mercadona|consum|dia]
    spendlens sanitize <text> [--tokens]
    spendlens classify <text>...
    spendlens statements <csv> [--column] [--fallback-url] [--output]
"""
