"""
Triangulation Service
=====================

Request handling shell around the pipeline. A request is a point-set
message; the response carries the mesh message:

    {'success': True, 'mesh': {...}, 'statistics': {...}, 'diagnostics': {...}}
    {'success': False, 'error': '...'}

Every request gets its own smoothing buffers and spatial index, so one
service instance can handle requests from several threads.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Mapping, Optional

from .config import TriangulationConfig
from .core.exceptions import InsufficientDataError
from .io.messages import mesh_to_message, point_cloud_from_message
from .logger import get_logger
from .pipeline import TriangulationPipeline

logger = get_logger("service")


class TriangulationService:
    """
    Turns point-set requests into mesh responses.

    Example:
        >>> service = TriangulationService()
        >>> response = service.handle({'points': [[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]]})
        >>> response['success']
        True
    """

    def __init__(self, config: Optional[TriangulationConfig] = None):
        self.config = config or TriangulationConfig()
        self.pipeline = TriangulationPipeline(self.config)
        logger.info("Triangulation service ready")

    def handle(self, request: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Handle one triangulation request.

        Args:
            request: Point-set message

        Returns:
            Response dict; an empty cloud gives success=False with the error text

        Raises:
            ValueError: If the request is not a valid point-set message
        """
        logger.info("Service request received")
        cloud = point_cloud_from_message(request)
        logger.debug(f"Request holds {len(cloud)} points")

        logger.info("Triangulating")
        try:
            result = self.pipeline.run(cloud)
        except InsufficientDataError as e:
            logger.error(f"✗ Triangulation failed: {e}")
            return {'success': False, 'error': str(e)}
        logger.info("Triangulation done")

        logger.info("Converting to shape message")
        response = {
            'success': True,
            'mesh': mesh_to_message(result.mesh),
            'statistics': result.statistics,
            'diagnostics': result.diagnostics.summary()
        }

        header = request.get('header')
        if header is not None:
            response['header'] = dict(header)

        logger.info("Service processing done")
        return response

    def handle_batch(self, requests: List[Mapping[str, Any]],
                     max_workers: int = 4) -> List[Dict[str, Any]]:
        """
        Handle several requests concurrently.

        Responses are returned in request order. A malformed request raises
        its ValueError here, like handle() does.
        """
        if not requests:
            return []

        logger.info(f"Handling {len(requests)} requests with {max_workers} workers")
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            responses = list(executor.map(self.handle, requests))

        succeeded = sum(1 for r in responses if r['success'])
        logger.info(f"✓ Batch done: {succeeded}/{len(responses)} requests succeeded")
        return responses
