"""
Git Integration — Local mirrors, the system git binary, and GitHub.

This package owns everything that touches a repository: the git
subprocess wrapper, the on-disk mirror tree, the GitHub catalog used as
the upstream, and the SSH key git uses for private upstreams.
"""
