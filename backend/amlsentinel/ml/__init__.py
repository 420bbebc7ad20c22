"""
amlsentinel.ml

Couche “modèle” optionnelle du scoring :
- vectorisation canonique des features (train == inference),
- chargement du dernier artefact joblib (registry fichier),
- inférence normalisée en probabilité 0..1.

Sans artefact disponible, le scoring reste purement basé sur les règles.
"""
