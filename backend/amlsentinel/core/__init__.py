"""
amlsentinel.core

Package “cœur technique” : tout ce qui est transversal et ne dépend pas du domaine AML.

- settings : configuration (variables d’environnement, .env).
- logging : logs JSON + request_id.
- request_id : identifiant de corrélation (ContextVar).
- errors : taxonomie d’erreurs du domaine + format d’erreur API.
- security : clé API pour les opérations qui modifient la session.
"""
