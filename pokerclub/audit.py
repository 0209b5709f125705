"""
Audit Logging System for Club Operations

Every state change made by the membership, wallet and registration code is
logged with timestamp, acting user and operation details. Balance movements
get their own WALLET line so the audit trail can be reconciled against the
wallet_transactions ledger.

Usage:
    from pokerclub.audit import audit_log_create, audit_log_update, audit_log_wallet_movement

    # For new records
    audit_log_create('Registration', registration.id, f'Reserved seat in: {tournament.name}')

    # For updates
    audit_log_update('Wallet', wallet.id, 'Approved membership', {'status': 'pending'})

    # For balance movements
    audit_log_wallet_movement('buy_in', wallet, 3400, 'Buy-in for: Daily Deepstack')
"""

import logging
import os
from typing import Optional, Dict, Any, Union
from flask import current_app, has_request_context
from flask_login import current_user


# Configure audit logger
def setup_audit_logger():
    """Setup and configure the audit logger with proper formatting and file handling."""
    audit_logger = logging.getLogger('audit')
    audit_logger.setLevel(logging.INFO)

    # Prevent duplicate log entries
    if audit_logger.hasHandlers():
        return audit_logger

    log_dir = os.path.join(current_app.instance_path, 'logs')
    os.makedirs(log_dir, exist_ok=True)

    log_file = os.path.join(log_dir, 'audit.log')
    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.INFO)

    formatter = logging.Formatter(
        '%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    file_handler.setFormatter(formatter)
    audit_logger.addHandler(file_handler)

    # Prevent propagation to root logger
    audit_logger.propagate = False

    return audit_logger


def get_current_user_info() -> str:
    """Get current user information for audit logging."""
    if has_request_context() and current_user.is_authenticated:
        return f"{current_user.username} (ID: {current_user.id})"
    return "SYSTEM"


def _log_audit_failure(what: str, error: Exception):
    # Audit logging should never break application functionality, so the
    # failure is recorded where possible and otherwise dropped
    try:
        fallback_logger = setup_audit_logger()
        fallback_logger.error(f"AUDIT_FAILURE | Failed to log {what}: {str(error)}")
    except Exception:
        try:
            current_app.logger.error(f"AUDIT_FAILURE | Failed to log {what}: {str(error)}")
        except Exception:
            pass


def _format_details(data: Optional[Dict[str, Any]]) -> str:
    if not data:
        return ''
    return ' | ' + ', '.join(f'{key}={value}' for key, value in data.items())


def audit_log_create(model_name: str, record_id: Union[int, str], description: str,
                     additional_data: Optional[Dict[str, Any]] = None):
    """
    Log database record creation.

    Args:
        model_name: Name of the database model (e.g., 'Wallet', 'Registration')
        record_id: ID of the created record
        description: Human-readable description of the operation
        additional_data: Optional additional data to include in the log
    """
    try:
        logger = setup_audit_logger()
        user_info = get_current_user_info()

        log_message = (f"CREATE | {model_name} | ID: {record_id} | User: {user_info} | {description}"
                       f"{_format_details(additional_data)}")

        logger.info(log_message)
    except Exception as e:
        _log_audit_failure(f"CREATE for {model_name} ID {record_id}", e)


def audit_log_update(model_name: str, record_id: Union[int, str], description: str,
                     changes: Optional[Dict[str, Any]] = None):
    """
    Log database record updates.

    Args:
        model_name: Name of the database model
        record_id: ID of the updated record
        description: Human-readable description of the operation
        changes: Optional dictionary of field changes {'field': 'old_value'}
    """
    try:
        logger = setup_audit_logger()
        user_info = get_current_user_info()

        log_message = (f"UPDATE | {model_name} | ID: {record_id} | User: {user_info} | {description}"
                       f"{_format_details(changes)}")

        logger.info(log_message)
    except Exception as e:
        _log_audit_failure(f"UPDATE for {model_name} ID {record_id}", e)


def audit_log_wallet_movement(transaction_type: str, wallet, amount: int, description: str):
    """
    Log a wallet balance movement.

    Args:
        transaction_type: 'deposit', 'withdraw', 'buy_in' or 'refund'
        wallet: The Wallet whose balance changed (balance already updated)
        amount: Positive amount moved
        description: Human-readable description of the movement
    """
    try:
        logger = setup_audit_logger()
        user_info = get_current_user_info()

        log_message = (f"WALLET | {transaction_type.upper()} | Member: {wallet.member_id} | "
                       f"Club: {wallet.club_id} | Amount: {amount} | Balance: {wallet.balance} | "
                       f"User: {user_info} | {description}")

        logger.info(log_message)
    except Exception as e:
        _log_audit_failure(f"WALLET {transaction_type} for wallet {getattr(wallet, 'id', None)}", e)


def audit_log_authentication(event_type: str, username: str, success: bool):
    """
    Log authentication events.

    Args:
        event_type: Type of authentication event ('LOGIN', 'LOGOUT', 'SIGNUP')
        username: Username involved in the event
        success: Whether the operation was successful
    """
    try:
        logger = setup_audit_logger()

        status = "SUCCESS" if success else "FAILURE"
        log_message = f"AUTH | {event_type} | {status} | User: {username}"

        logger.info(log_message)
    except Exception as e:
        _log_audit_failure(f"AUTH {event_type} for {username}", e)


def audit_log_security_event(event_type: str, description: str):
    """
    Log security-related events.

    Args:
        event_type: Type of security event ('ACCESS_DENIED', 'LOCKED_ACCOUNT')
        description: Human-readable description of the event
    """
    try:
        logger = setup_audit_logger()
        user_info = get_current_user_info()

        log_message = f"SECURITY | {event_type} | User: {user_info} | {description}"

        logger.warning(log_message)
    except Exception as e:
        _log_audit_failure(f"SECURITY {event_type}", e)


def audit_log_system_event(event_type: str, description: str):
    """
    Log system-level events.

    Args:
        event_type: Type of system event ('SEED', 'MIGRATION', 'BACKUP')
        description: Human-readable description of the event
    """
    try:
        logger = setup_audit_logger()

        log_message = f"SYSTEM | {event_type} | {description}"

        logger.info(log_message)
    except Exception as e:
        _log_audit_failure(f"SYSTEM {event_type}", e)


def get_model_changes(model_instance, form_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Helper function to detect changes between model instance and form data.

    Args:
        model_instance: The database model instance
        form_data: Dictionary of new values from form

    Returns:
        Dictionary of changes with old values
    """
    changes = {}

    for field, new_value in form_data.items():
        if hasattr(model_instance, field):
            old_value = getattr(model_instance, field)
            if old_value != new_value:
                changes[field] = str(old_value) if old_value is not None else None

    return changes
