"""Domain layer for pennywise application.

Services are imported from their modules (``pennywise.domain.transaction``
and so on); this package only groups them.
"""
