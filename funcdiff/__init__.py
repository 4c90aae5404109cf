r"""@package funcdiff

Differentiable multivariate functions.

Two complementary ways of computing derivatives are provided.

The funcdiff.exprs package builds symbolic expression graphs from variables,
constants and elementary operations. Derivatives of any order are again
expression graphs, created on first request and cached in the nodes.
Functions can be evaluated in floating point or `mpmath` arbitrary precision
arithmetic, partially evaluated and converted to `SymPy`.

The funcdiff.dual package implements forward mode automatic differentiation
with dual numbers carrying gradients and Hessians (and optionally some third
derivatives). Functions computed from dual numbers can be embedded into
expression graphs and checked against finite differences.

Package wide settings are found in funcdiff.config.
"""
