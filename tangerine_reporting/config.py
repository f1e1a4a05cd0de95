"""
Configuration management for tangerine reporting
"""

import yaml
import os
import re
from pathlib import Path
from typing import Dict, Any
from dotenv import load_dotenv

def get_project_root() -> Path:
    """Get the project root directory"""
    return Path(__file__).parent.parent

def _substitute_env_vars(text: str) -> str:
    """
    Substitute environment variables in text using ${VAR} syntax
    
    Args:
        text: Text containing ${VAR} patterns
        
    Returns:
        Text with environment variables substituted
    """
    if not isinstance(text, str):
        return text
    
    # ${VAR} or ${VAR:default}
    pattern = r'\$\{([^}:]+)(?::([^}]*))?\}'
    
    def replace_match(match):
        var_name = match.group(1)
        default_value = match.group(2) if match.group(2) is not None else ''
        return os.getenv(var_name, default_value)
    
    return re.sub(pattern, replace_match, text)

def _process_config_values(config: Any) -> Any:
    """
    Recursively process config values to substitute environment variables
    
    Args:
        config: Configuration value (dict, list, or primitive)
        
    Returns:
        Processed configuration
    """
    if isinstance(config, dict):
        return {key: _process_config_values(value) for key, value in config.items()}
    elif isinstance(config, list):
        return [_process_config_values(item) for item in config]
    elif isinstance(config, str):
        return _substitute_env_vars(config)
    else:
        return config

def _safe_int(value, default):
    try:
        return int(value)
    except (ValueError, TypeError):
        return default

def load_config(config_path: str = None) -> Dict[str, Any]:
    """
    Load configuration from config.yml and environment variables
    
    Args:
        config_path: Optional path to config file
        
    Returns:
        Configuration dictionary
    """
    load_dotenv()
    
    if config_path is None:
        config_path = get_project_root() / "config.yml"
    else:
        config_path = Path(config_path)
    
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")
    
    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}
    
    config = _process_config_values(config)
    
    _override_with_env_vars(config)
    
    return config

def _override_with_env_vars(config: Dict[str, Any]) -> None:
    """Override config values with environment variables"""
    
    # CouchDB settings
    if 'couchdb' not in config or config['couchdb'] is None:
        config['couchdb'] = {}
    
    couch = config['couchdb']
    if os.getenv('BASE_DB_URL'):
        couch['base_db'] = os.getenv('BASE_DB_URL')
    if os.getenv('RESULT_DB_URL'):
        couch['result_db'] = os.getenv('RESULT_DB_URL')
    couch['timeout'] = _safe_int(os.getenv('COUCHDB_TIMEOUT', couch.get('timeout', 30)), 30)
    couch.setdefault('design_doc', 'ojai')
    
    # Output settings
    if 'output' not in config or config['output'] is None:
        config['output'] = {}
    
    if os.getenv('CSV_OUTPUT_DIR'):
        config['output']['csv_directory'] = os.getenv('CSV_OUTPUT_DIR')
    config['output'].setdefault('csv_directory', 'csv')
    
    config['environment'] = os.getenv('ENVIRONMENT', 'development')

def validate_config(config: Dict[str, Any]) -> bool:
    """
    Validate configuration for required fields
    
    Args:
        config: Configuration dictionary
        
    Returns:
        True if valid, raises ValueError if invalid
    """
    required_fields = [
        'project.name',
        'couchdb.base_db',
        'couchdb.result_db'
    ]
    
    for field in required_fields:
        keys = field.split('.')
        value = config
        
        try:
            for key in keys:
                value = value[key]
            
            if not value:
                raise ValueError(f"Required configuration field '{field}' is empty")
                
        except (KeyError, TypeError):
            raise ValueError(f"Required configuration field '{field}' is missing")
    
    return True
