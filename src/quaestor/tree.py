'''
Path tree reconstruction of a flat key listing.

Keys are split on the separator and every segment becomes a `Node`. A node
holds a value if some key terminates at it, and holds children if some key
continues past it. Both can be true at once: Consul happily stores `a/b` and
`a/b/c` side by side, and the tree keeps both rather than rejecting the shape.
'''

import logging

from .core import join_key, split_key
from .coders import decode_value, to_text
from .errors import MalformedKey, ValueDecodeError

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name

INDENT = 4

class Node(object):
    '''
    One path segment of the tree.

    `value` is `None` unless a key terminates at this node, in which case
    it holds the decoded bytes. `children` maps segment names to `Node`s.
    '''

    def __init__(self, value=None):
        self.value = value
        self.children = {}

    def child(self, name):
        '''
        Get the child `name`, creating an empty one if needed.
        '''

        return self.children.setdefault(name, Node())

    def descend(self, parts):
        '''
        Walk down the segments `parts`, creating nodes as needed,
        and return the last node.
        '''

        node = self
        for part in parts:
            node = node.child(part)

        return node

    def flatten(self):
        '''
        Return a dictionary of all values in the tree.

        The key is the complete path of the value.
        '''

        result = {}
        if self.value is not None:
            result[''] = self.value

        # recursively flatten
        for (name, child) in self.children.items():
            # prepend the path with the child name
            result.update({join_key(name, p): v
                           for (p, v) in child.flatten().items()})

        return result

    def __repr__(self):
        return 'Node(value={!r}, children={!r})'.format(self.value, sorted(self.children))

def build_tree(entries):
    '''
    Build a tree from the `Entry` sequence `entries`.

    Entries with malformed keys or undecodable values are skipped. If the
    same key appears twice, the later entry wins.
    '''

    root = Node()

    for entry in entries:
        try:
            parts = split_key(entry.key)
            value = decode_value(entry.value)
        except (MalformedKey, ValueDecodeError) as exc:
            logger.warning('skipping "{}": {}'.format(entry.key, exc))
            continue

        node = root.descend(parts)
        if node.value is not None:
            logger.debug('overwriting duplicate key "{}"'.format(entry.key))
        node.value = value

    return root

def emit_tree(root, indent=INDENT):
    '''
    Generate display lines for the tree below `root`.

    The walk is pre-order and depth-first with children sorted by name.
    The `root` node itself is not displayed. A node with a value shows as
    `name: value`; a node with only children shows as `name:`.
    '''

    stack = [(name, root.children[name], 0) for name in sorted(root.children, reverse=True)]

    while stack:
        (name, node, depth) = stack.pop()
        pad = ' ' * (indent * depth)

        if node.value is not None:
            yield '{}{}: {}'.format(pad, name, to_text(node.value))
        elif node.children:
            yield '{}{}:'.format(pad, name)

        # push in reverse so the smallest name pops first
        for child in sorted(node.children, reverse=True):
            stack.append((child, node.children[child], depth + 1))
