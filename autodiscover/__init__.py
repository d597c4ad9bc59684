"""
CNF Autodiscover - test target discovery for Kubernetes clusters.

Builds the catalog of pods, containers, operators, deployments, nodes and
CRDs that a CNF certification run exercises, using labels and annotations
found on the live cluster.
"""

__version__ = "0.3.0"
