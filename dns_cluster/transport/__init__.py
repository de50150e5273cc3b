from .hello import (
    Hello as Hello,
    sign_node_name as sign_node_name,
    verify_hello as verify_hello,
)
from .node_transport import (
    NodeTransport as NodeTransport,
    UNDISTRIBUTED_NODE_NAME as UNDISTRIBUTED_NODE_NAME,
)
