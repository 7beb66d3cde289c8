from .node import NodeProtocol as NodeProtocol
