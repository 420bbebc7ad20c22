"""
amlsentinel.services

Logique applicative du cœur d’analyse, indépendante du transport HTTP.

- transaction_store : ensemble canonique des transactions (ingestion atomique, snapshots)
- scoring_gateway : appel du Risk Scorer (timeout, retries, concurrence bornée)
- feature_builder : features de contexte envoyées au scorer
- query_engine : filtre + tri du tableau (pur)
- graph_builder : graphe de comptes dérivé (pur)
- report_service : résumé de session + données de rapport
- session : coordination upload / simulation / vues
"""
