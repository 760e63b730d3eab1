# stage1_read.py
#
# Project: Sparsified PageRank
#
# Description:
#   Stage 1 - Read the web graph edge list.
#
#   Source auto-detection:
#     - "gs://bucket/object"       -> Google Cloud Storage object.
#     - "http://..." / "https://..." -> fetched with requests (keep-alive
#                                     session, adapter-level retries).
#     - anything else              -> local file path.
#
#   File format (SNAP edge list):
#       # Directed graph (each unordered pair of nodes is saved once): ...
#       # Web graph from ...
#       # Nodes: 875713 Edges: 5105039
#       # FromNodeId    ToNodeId
#       0       11342
#       0       824020
#       ...
#   Lines starting with '#' are comments; the "Nodes: N Edges: M" comment is
#   picked up when present.  Every other non-blank line is "from to".
#
# References:
#   [1] Stanford Large Network Dataset Collection
#       https://snap.stanford.edu/data/
#   [2] Downloading objects from GCS
#       https://cloud.google.com/storage/docs/downloading-objects#download-object-python

import os
import re
from collections import namedtuple

import numpy as np
import requests
from requests.adapters import HTTPAdapter
from tqdm import tqdm

from sparsified_pagerank.utils import print_stage, print_step, print_success, print_warning, print_summary_box, Timer


HEADER_PATTERN = re.compile(r'Nodes:\s*(\d+)\s+Edges:\s*(\d+)')

Graph = namedtuple("Graph", ["edges", "number_of_pages", "declared_nodes", "declared_edges", "source"])


class GraphFormatError(ValueError):
    """The graph input does not follow the edge-list format."""


# ===================================================================
# Parsing
# ===================================================================

def parse_edge_list(lines, source="<memory>", progress=False):
    """
    Parse an edge list.

    Args:
        lines (iterable[str]): Lines of the graph file
        source (str): Name used in error messages
        progress (bool): Show a tqdm progress bar while parsing

    Returns:
        Graph: edges as an (E, 2) int64 array of (from, to) pairs and
               number_of_pages = highest page index + 1 (or the declared node
               count when that is larger)
    """
    declared_nodes = declared_edges = None
    sources, targets = [], []

    for line_number, line in enumerate(tqdm(
        lines,
        desc="  Parsing",
        unit="line",
        bar_format="  {l_bar}{bar:30}{r_bar}",
        ncols=90,
        disable=not progress,
    ), start=1):
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith('#'):
            match = HEADER_PATTERN.search(stripped)
            if match:
                declared_nodes, declared_edges = int(match.group(1)), int(match.group(2))
            continue

        parts = stripped.split()
        try:
            src, dst = int(parts[0]), int(parts[1])
        except (IndexError, ValueError):
            raise GraphFormatError(
                f"{source}:{line_number}: expected 'from to', got {stripped!r}") from None
        if src < 0 or dst < 0:
            raise GraphFormatError(f"{source}:{line_number}: negative page index")
        sources.append(src)
        targets.append(dst)

    edges = np.column_stack([
        np.asarray(sources, dtype=np.int64),
        np.asarray(targets, dtype=np.int64),
    ]) if sources else np.empty((0, 2), dtype=np.int64)

    number_of_pages = int(edges.max()) + 1 if len(edges) else 0
    if declared_nodes is not None and declared_nodes > number_of_pages:
        number_of_pages = declared_nodes
    if number_of_pages == 0:
        raise GraphFormatError(f"{source}: no edges and no node count found")

    return Graph(edges, number_of_pages, declared_nodes, declared_edges, source)


# ===================================================================
# Sources
# ===================================================================

def _read_local(path):
    with open(path, 'r') as f:
        return f.read()


def _read_gcs(uri, verbose=False):
    """Download a gs://bucket/object graph file as text."""
    from google.auth.exceptions import DefaultCredentialsError
    from google.cloud import storage

    bucket_name, _, blob_name = uri[len("gs://"):].partition('/')
    if not bucket_name or not blob_name:
        raise GraphFormatError(f"invalid GCS URI: {uri!r}")

    try:
        client = storage.Client()
        if verbose:
            print_step("Authenticated GCS client")
    except DefaultCredentialsError:
        client = storage.Client.create_anonymous_client()
        if verbose:
            print_step("Anonymous GCS client (public endpoint)")
    return client.bucket(bucket_name).blob(blob_name).download_as_text()


def _read_http(url, timeout=60):
    """Fetch an http(s) graph file as text."""
    with requests.Session() as session:
        session.mount('https://', HTTPAdapter(max_retries=3))
        session.mount('http://', HTTPAdapter(max_retries=3))
        resp = session.get(url, timeout=timeout)
        resp.raise_for_status()
        return resp.text


def read_source_text(source, verbose=False):
    """Return the raw text of a graph source (local path, gs:// or http(s)://)."""
    if source.startswith("gs://"):
        return _read_gcs(source, verbose)
    if source.startswith(("http://", "https://")):
        return _read_http(source)
    if not os.path.isfile(source):
        raise FileNotFoundError(f"graph file not found: {source}")
    return _read_local(source)


# ===================================================================
# Unified entry point
# ===================================================================

def read_graph(source, verbose=False):
    """
    Read and parse the web graph.

    Args:
        source (str): Local path, gs:// URI or http(s):// URL
        verbose (bool): Print progress and a summary box

    Returns:
        Graph
    """
    if verbose:
        print_stage("Read", f"Load edge list from {source}")

    with Timer("Total Stage 1", quiet=not verbose):
        text = read_source_text(source, verbose)
        graph = parse_edge_list(text.splitlines(), source=source, progress=verbose)

        if graph.declared_edges is not None and graph.declared_edges != len(graph.edges):
            print_warning(f"File claims {graph.declared_edges} edges, found {len(graph.edges)}")

        if verbose:
            print_success(f"Parsed {len(graph.edges)} edges")
            print_summary_box("Stage 1 Summary", {
                "Source": source,
                "Declared pages": graph.declared_nodes if graph.declared_nodes is not None else "n/a",
                "Declared edges": graph.declared_edges if graph.declared_edges is not None else "n/a",
                "Number of pages": graph.number_of_pages,
                "Edges read": len(graph.edges),
            })

    return graph
