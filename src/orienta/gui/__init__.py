"""Desktop GUI implementation built with PySide6/Qt and pyqtgraph.

The widgets here only render :class:`~orienta.core.graph_model.GraphSnapshot`
objects and forward user commands to the
:class:`~orienta.core.controller.ConnectionController`; the Qt event loop
drives the controller's :class:`~orienta.core.dispatch.EventLoop`.
"""
