"""PyQt5 front-end for the import pipeline."""
