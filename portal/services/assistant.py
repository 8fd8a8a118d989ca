"""
Adapter for the external pharmacist assistant.

The assistant is a text-generation service run elsewhere: it receives a
query string and answers with a response string.  Only that contract is
implemented here.
"""
import logging

import requests
from django.conf import settings

from portal.exceptions import FeatureDisabled, StoreUnavailable

logger = logging.getLogger(__name__)


def ask_assistant(query: str) -> str:
    if not settings.ASSISTANT_ENABLE or not settings.ASSISTANT_URL:
        raise FeatureDisabled("L'assistant n'est pas activé sur ce serveur.")
    try:
        r = requests.post(settings.ASSISTANT_URL, json={'query': query}, timeout=settings.ASSISTANT_TIMEOUT)
        r.raise_for_status()
        data = r.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning('Assistant call failed: %s', e)
        raise StoreUnavailable("Désolé, une erreur s'est produite. Veuillez réessayer.") from e
    answer = data.get('response') if isinstance(data, dict) else None
    if not isinstance(answer, str):
        raise StoreUnavailable("Réponse invalide de l'assistant.")
    return answer
