"""Directory traversal producing an annotated tree of FileNodes.

The walker visits every entry beneath a scan root, records an exclusion verdict
for each one and never descends into excluded directories. The tree_views module
flattens, counts and renders the resulting tree.
"""
