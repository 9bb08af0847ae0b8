#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Some useful functions for parsing XML file types.

Note we need to name this `xml_reading` so as not to clobber the standard
library package.

"""
from xml.etree.ElementTree import iterparse


def gen_nodes(file_path, node_names, *, with_root=False):
    """Efficiently iterate over specific nodes of an XML document.

    Each node is yielded once it is complete. Everything parsed so far is
    dropped after the yield, so hold on to what you need from a node, not
    the node itself.

    http://effbot.org/zone/element-iterparse.htm
    """
    context = iter(iterparse(file_path, events=('start', 'end')))
    event, root = next(context)  # get the root element

    if with_root:
        yield root

    for event, element in context:
        if event == 'end' and sans_ns(element.tag) in node_names:
            yield element
            root.clear()


def sans_ns(tag):
    """Remove the namespace prefix from a tag."""
    return tag.split('}')[-1]


def children(node, name):
    """Direct children of `node` called `name` (namespaces ignored)."""
    return [child for child in node if sans_ns(child.tag) == name]


def child_text(node, name):
    """Text of the first direct child called `name`, or None."""
    for child in node:
        if sans_ns(child.tag) == name:
            return child.text
    return None


def recursive_text_extract(node):
    """Map the tag of every leaf below `node` to its text.

    Nesting (and namespaces) are flattened away, so

        <Trackpoint><Position><LatitudeDegrees>52.7</LatitudeDegrees>...

    comes back as ``{'LatitudeDegrees': '52.7', ...}``.
    """
    extracted = {}
    for child in node:
        if len(child):
            extracted.update(recursive_text_extract(child))
        else:
            extracted[sans_ns(child.tag)] = child.text
    return extracted
