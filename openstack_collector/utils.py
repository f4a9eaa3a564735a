# utils.py

"""Utility functions for the OpenStack metrics collector."""

import logging
import os
from typing import Mapping, Optional

import openstack
from openstack.connection import Connection

from .config import (
    COMPUTE_API_VERSION, DEFAULT_DOMAIN, DOMAIN_ENV_VARS, INSECURE_ENV_VAR,
    LOG_DATE_FORMAT, LOG_FORMAT, REQUIRED_ENV_VARS, TRUTHY_VALUES
)
from .exceptions import AuthenticationError, ConfigurationError
from .models import CollectorConfig

logger = logging.getLogger(__name__)

def setup_logging(verbose: bool = False) -> None:
    """Configure logging with appropriate level and format."""
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT
    )

def load_config(auth_url: Optional[str] = None,
                project: Optional[str] = None,
                username: Optional[str] = None,
                password: Optional[str] = None,
                domain: Optional[str] = None,
                insecure: bool = False,
                parallel: bool = False,
                environ: Optional[Mapping[str, str]] = None) -> CollectorConfig:
    """
    Build the collector configuration.

    Explicit values win over the OS_* environment variables.
    Raises ConfigurationError if a required value is missing.
    """
    env = os.environ if environ is None else environ

    values = dict(zip(REQUIRED_ENV_VARS, (auth_url, project, username, password)))
    for var in REQUIRED_ENV_VARS:
        if not values[var]:
            values[var] = env.get(var)

    missing_vars = [var for var in REQUIRED_ENV_VARS if not values[var]]
    if missing_vars:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing_vars)}"
        )

    if not domain:
        domain = next((env[var] for var in DOMAIN_ENV_VARS if env.get(var)), DEFAULT_DOMAIN)

    if not insecure:
        insecure = env.get(INSECURE_ENV_VAR, "").strip().lower() in TRUTHY_VALUES

    return CollectorConfig(
        auth_url=values['OS_AUTH_URL'],
        project=values['OS_PROJECT_NAME'],
        username=values['OS_USERNAME'],
        password=values['OS_PASSWORD'],
        domain=domain,
        verify=not insecure,
        parallel=parallel
    )

def get_openstack_connection(config: CollectorConfig) -> Connection:
    """
    Establish an authenticated connection to OpenStack.
    Raises AuthenticationError if the identity service refuses us.
    """
    if not config.verify:
        logger.warning("TLS certificate verification is disabled")

    try:
        conn = openstack.connect(
            auth_url=config.auth_url,
            project_name=config.project,
            username=config.username,
            password=config.password,
            user_domain_name=config.domain,
            project_domain_name=config.domain,
            verify=config.verify,
            compute_api_version=COMPUTE_API_VERSION,
            load_yaml_config=False,
            load_envvars=False
        )
    except Exception as e:
        raise AuthenticationError(f"Unable to authenticate OpenStack user: {e}") from e

    try:
        conn.authorize()
    except Exception as e:
        conn.close()
        raise AuthenticationError(f"Unable to authenticate OpenStack user: {e}") from e

    return conn
