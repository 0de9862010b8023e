"""
Configuração do Celery para o projeto E-commerce.

O módulo DJANGO_SETTINGS_MODULE é definido antes da instanciação da app,
garantindo que o Celery leia as settings do Django (prefixo CELERY_).
As notificações de mudança de status de pedido rodam como tasks.
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("ecommerce")

# Lê configurações do Django com prefixo CELERY_
app.config_from_object("django.conf:settings", namespace="CELERY")

# Descobre tasks.py em cada app instalada (modules.orders.tasks)
app.autodiscover_tasks()
