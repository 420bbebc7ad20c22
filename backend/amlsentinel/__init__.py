"""
AML Sentinel : cœur d’analyse anti-blanchiment.

- Scoring de risque par transaction (scorer enfichable) + explication.
- Vue tableau filtrable / triable des transactions flaggées.
- Graphe de comptes dérivé pour l’investigation réseau.
- Simulation “what-if” non persistée.
"""

__version__ = "0.1.0"
