"""
Erreurs métier partagées par les services (garages, items, réservations, commandes, paiements).
Chaque classe porte le code HTTP utilisé par le handler enregistré dans app_setup.exceptions.
"""


class DomainError(Exception):
    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class AuthError(DomainError):
    """Identité absente ou différente de l'identité authentifiée."""
    status_code = 401


class AuthorizationError(DomainError):
    """Authentifié mais pas propriétaire de la ressource."""
    status_code = 403


class ValidationError(DomainError):
    status_code = 400


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    """L'item n'est pas dans le statut requis pour la transition demandée."""
    status_code = 409


class InvalidStateError(DomainError):
    status_code = 409


class PaymentGatewayError(DomainError):
    status_code = 502


class WebhookConfigError(DomainError):
    status_code = 500


class WebhookSignatureError(DomainError):
    status_code = 400
