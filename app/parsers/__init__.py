"""
app/parsers package marker.
"""

from app.parsers.csv_tokenizer import CSVHeaderError, TokenizedCSV, tokenize_csv

__all__ = [
    "CSVHeaderError",
    "TokenizedCSV",
    "tokenize_csv",
]
