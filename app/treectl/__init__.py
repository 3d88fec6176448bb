"""treectl - compare two directory trees and reconcile them.

Scans a source and a target tree, classifies every differing path,
renders a reviewable action table and replays the reviewed table
against a destination root.
"""

__version__ = "0.3.0"
