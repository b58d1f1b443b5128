from intake_flow.api.routes.catalog import catalog_bp
from intake_flow.api.routes.wizard import wizard_bp
from intake_flow.api.routes.monitoring import monitoring_bp

__all__ = ['catalog_bp', 'wizard_bp', 'monitoring_bp']
