"""Defensive output encoders and path containment checks.

Re-exports the public API so callers can write
``from remediation import for_html_content, is_outside``.
"""

from remediation.encode import (  # noqa: F401
    ENCODERS,
    crlf_apache_encoder,
    crlf_basic_encoder,
    encode,
    for_css_string,
    for_css_url,
    for_html_attribute,
    for_html_content,
    for_html_unquoted_attribute,
    for_javascript,
    for_javascript_attribute,
    for_javascript_block,
    for_uri_component,
    log_content_encoder,
    multi_log_content_encoder,
)

from remediation.os_codec import (  # noqa: F401
    POSIX,
    WINDOWS,
    current_os_family,
    os_parameter_encoder,
    unix_encode,
    windows_encode,
)

from remediation.file_utils import (  # noqa: F401
    canonical_path,
    is_outside,
    normalize,
)
