"""Constantes HTTP pour éviter les valeurs magiques dans le code.

Codes de statut utilisés par l'API de validation et codes d'erreur de l'enveloppe standard.
"""

HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_NOT_FOUND = 404
HTTP_UNPROCESSABLE_ENTITY = 422
HTTP_INTERNAL_SERVER_ERROR = 500

ERROR_CODES = {
    HTTP_BAD_REQUEST: "BAD_REQUEST",
    HTTP_NOT_FOUND: "NOT_FOUND",
    HTTP_UNPROCESSABLE_ENTITY: "VALIDATION_ERROR",
    HTTP_INTERNAL_SERVER_ERROR: "INTERNAL_ERROR",
}

CODE_UNKNOWN_STEP = "UNKNOWN_STEP"
CODE_APPLICATION_REFUSED = "APPLICATION_REFUSED"
