# checkout_service.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale du service de checkout.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose l'URL de l'API billetterie distante et ses délais
- Expose la politique de polling du paiement mobile (intervalle, nombre de tentatives)
- Sécurité cookies (session navigateur), CORS/hosts
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _int_env(name: str, default: int) -> int:
    try:
        return int(_clean_env(os.getenv(name) or "") or default)
    except ValueError:
        return default

def _float_env(name: str, default: float) -> float:
    try:
        return float(_clean_env(os.getenv(name) or "") or default)
    except ValueError:
        return default

# API billetterie distante (commandes, paiements M-Pesa, codes promoteurs)
# - API_BASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
API_BASE_URL = _clean_env(os.getenv("API_BASE_URL") or os.getenv("NEXT_PUBLIC_API_URL") or "http://localhost:8000")
if API_BASE_URL and not API_BASE_URL.startswith("http"):
    API_BASE_URL = "https://" + API_BASE_URL
if API_BASE_URL.endswith("/"):
    API_BASE_URL = API_BASE_URL.rstrip("/")
API_TIMEOUT_SECONDS = _float_env("API_TIMEOUT_SECONDS", 30.0)

# Polling du statut de paiement: plafond total = intervalle x tentatives (10s x 30 = 5 min)
PAYMENT_POLL_INTERVAL_SECONDS = _float_env("PAYMENT_POLL_INTERVAL_SECONDS", 10.0)
PAYMENT_POLL_MAX_ATTEMPTS = _int_env("PAYMENT_POLL_MAX_ATTEMPTS", 30)

# Panier: quantité maximale par type de billet, devise d'affichage
MAX_TICKETS_PER_TYPE = _int_env("MAX_TICKETS_PER_TYPE", 10)
CURRENCY = _clean_env(os.getenv("CURRENCY") or "KES")

# Registre des checkouts en mémoire
# - inactif (aucune requête, pas de suivi en cours) au-delà de ce délai: retiré
# - confirmé: gardé ce délai pour que le front lise la confirmation, puis retiré
CHECKOUT_IDLE_TTL_SECONDS = _float_env("CHECKOUT_IDLE_TTL_SECONDS", 1800.0)
CHECKOUT_CONFIRMED_TTL_SECONDS = _float_env("CHECKOUT_CONFIRMED_TTL_SECONDS", 300.0)

# Cookies/ Sécurité: session navigateur (porte l'identifiant de checkout)
SESSION_SECRET_KEY = _clean_env(os.getenv("SESSION_SECRET_KEY") or "replace_me_with_a_long_random_secret")
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "checkout_session")
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]
