"""Figures for the popgen-lab exercises.

Submodules:
  - style:      shared colors and axes styling
  - drift:      drift trajectories, variance and heterozygosity vs theory
  - linkage:    LD decay and r² trajectories
  - inbreeding: close-inbreeding systems, pedigree check, base change
"""
