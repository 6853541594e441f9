import re
from typing import List

MAX_ITEMS = 5
MIN_LINE_LENGTH = 4
CURRENCY_SYMBOLS = ("$", "€", "£")

DIGITS_ONLY = re.compile(r"^\d+$")
SECTION_HEADER = re.compile(r"^(?:starters|mains|desserts|drinks)|^menu$", re.IGNORECASE)


def is_dish_line(line: str) -> bool:
    clean_line = line.strip()
    if len(clean_line) < MIN_LINE_LENGTH:
        return False
    if DIGITS_ONLY.match(clean_line):
        return False
    if any(symbol in clean_line for symbol in CURRENCY_SYMBOLS):
        return False
    if SECTION_HEADER.match(clean_line):
        return False
    return True


def filter_menu_lines(lines: List[str], limit: int = MAX_ITEMS) -> List[str]:
    """
    Keeps the OCR lines that look like dish names, in their original order,
    and returns at most `limit` of them.

    A line is dropped when it is shorter than 4 characters, is only digits,
    carries a currency symbol, or is a section header (Starters, Mains,
    Desserts, Drinks, or exactly "Menu").
    """
    return [line for line in lines if is_dish_line(line)][:limit]
