# src/typefont/__init__.py

"""
Typefont: recognize the font of the text in an image.

The text of the image is recognized character by character, and every
character is compared against the reference glyphs of each font of a corpus
with a perceptual and a pixel based metric. Fonts are ranked by their mean
similarity.
"""

__version__ = "0.1.0"
