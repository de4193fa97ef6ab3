"""
The `base` sub-package contains the `sanity` module, with the argument
checks and argparse validators used by the TriMSA CLI program, and the
expansion of input directories into alignment files.
"""
