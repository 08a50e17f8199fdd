"""Contratos (Protocol) que implementan los adaptadores concretos.

El Core depende de estas abstracciones, no de Aviationstack, Google u OpenAI.
"""
