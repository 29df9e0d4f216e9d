"""bazelmod -- scaffolding and dependency linking for Bazel iOS projects.

Generates Clean-Architecture module skeletons (Core / Data / Feature / Common)
and splices their labels into existing ``BUILD.bazel`` files without
disturbing hand-written content.
"""

__version__ = "0.1.0"
