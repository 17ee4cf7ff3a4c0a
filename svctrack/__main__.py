"""
Permite `python -m svctrack <comando>`.

Comandos:
  serve         – Arranca el tracker HTTP
  query         – Consulta la vista actual de un tracker
  report NAME   – Publica un servicio en un tracker
"""
from .cli import _main

if __name__ == "__main__":
    _main()
