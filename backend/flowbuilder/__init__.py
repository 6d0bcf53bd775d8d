"""
flowbuilder — workflow graph editing engine.

Holds the node/edge model behind a visual workflow builder and the
structural edits (insert action, insert if/else, delete, branch
reconciliation) that keep the graph and its lane layout consistent.
"""

__version__ = "0.1.0"
