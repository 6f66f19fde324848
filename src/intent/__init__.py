"""Edit intent resolution.

The intent layer converts an English natural-language edit instruction into a strict
`ResolverResult` (operation, updated structured parameters, mask requirement and prompt), which is
then used to drive image generation.
"""
