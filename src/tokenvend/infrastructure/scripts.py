"""Central registry for Redis Lua scripts used across the application.

This module contains Redis Lua scripts that are registered at application startup
for EVALSHA optimization. Every script returns a two element array whose first
element is a numeric status code and whose second element is a JSON document
(or an identifier) the caller can use for error reporting.

Return Code Conventions:
    - 0: Stale - The stored document's ``version`` does not match the version
         the caller read. Nothing was written. The second element contains the
         current document.

    - 1: Success - The write was applied. The second element contains the new
         document.

    - 2: Not found - The primary key does not exist. The second element is an
         empty string.

    - 3: Limit exceeded - The vendor has no free customer slot. The second
         element contains the current vendor document.

    - 4: Already exists - A unique key is already taken (vendor email, disco +
         meter, token for a request) or the flag being set is already set
         (vendor approved, upgrade pending). The second element contains the
         existing document or identifier.

    - 5: Precondition failed - The vendor is not approved, or there is no
         pending upgrade to apply. The second element contains the current
         document.

    - 6: Mismatch - The requested upgrade slots differ from the pending
         intent. The second element contains the current vendor document.
"""

from typing import Any, Optional, Tuple

VENDOR_SCRIPTS = {
    "create_vendor": """
        local vendor_key = KEYS[1]
        local email_key = KEYS[2]
        local all_key = KEYS[3]
        local pending_key = KEYS[4]
        local vendor_json = ARGV[1]
        local vendor_id = ARGV[2]
        local score = tonumber(ARGV[3])

        local existing = redis.call('GET', email_key)
        if existing then
            return {4, existing}
        end

        redis.call('SET', vendor_key, vendor_json)
        redis.call('SET', email_key, vendor_id)
        redis.call('ZADD', all_key, score, vendor_id)
        redis.call('ZADD', pending_key, score, vendor_id)
        return {1, vendor_json}
    """,
    "approve_vendor": """
        local vendor_key = KEYS[1]
        local pending_key = KEYS[2]
        local approved_key = KEYS[3]
        local now = ARGV[1]
        local vendor_id = ARGV[2]
        local score = tonumber(ARGV[3])

        local raw = redis.call('GET', vendor_key)
        if not raw then
            return {2, ''}
        end
        local vendor = cjson.decode(raw)
        if vendor.approved == true then
            return {4, raw}
        end

        vendor.approved = true
        vendor.approved_at = now
        vendor.updated_at = now
        local new_val = cjson.encode(vendor)
        redis.call('SET', vendor_key, new_val)
        redis.call('ZREM', pending_key, vendor_id)
        redis.call('ZADD', approved_key, score, vendor_id)
        return {1, new_val}
    """,
    "register_customer": """
        local vendor_key = KEYS[1]
        local meter_key = KEYS[2]
        local customer_key = KEYS[3]
        local vendor_customers_key = KEYS[4]
        local all_customers_key = KEYS[5]
        local pending_key = KEYS[6]
        local meter_index_key = KEYS[7]
        local customer_json = ARGV[1]
        local customer_id = ARGV[2]
        local score = tonumber(ARGV[3])
        local now = ARGV[4]

        local raw = redis.call('GET', vendor_key)
        if not raw then
            return {2, ''}
        end
        local vendor = cjson.decode(raw)
        if vendor.approved ~= true then
            return {5, raw}
        end

        local existing = redis.call('GET', meter_key)
        if existing then
            return {4, existing}
        end

        -- Check-and-increment must happen in one step
        local count = tonumber(vendor.customer_count)
        local limit = tonumber(vendor.customer_limit)
        if count >= limit then
            return {3, raw}
        end

        vendor.customer_count = count + 1
        vendor.updated_at = now
        local new_val = cjson.encode(vendor)
        redis.call('SET', vendor_key, new_val)
        redis.call('SET', meter_key, customer_id)
        redis.call('SET', customer_key, customer_json)
        redis.call('ZADD', vendor_customers_key, score, customer_id)
        redis.call('ZADD', all_customers_key, score, customer_id)
        redis.call('ZADD', pending_key, score, customer_id)
        redis.call('ZADD', meter_index_key, score, customer_id)
        return {1, new_val}
    """,
    "begin_vendor_upgrade": """
        local vendor_key = KEYS[1]
        local slots = tonumber(ARGV[1])
        local amount = tonumber(ARGV[2])
        local reference = ARGV[3]
        local now = ARGV[4]

        local raw = redis.call('GET', vendor_key)
        if not raw then
            return {2, ''}
        end
        local vendor = cjson.decode(raw)
        if vendor.pending_upgrade == true then
            return {4, raw}
        end

        vendor.pending_upgrade = true
        vendor.pending_upgrade_slots = slots
        vendor.pending_upgrade_amount = amount
        vendor.pending_upgrade_reference = reference
        vendor.updated_at = now
        local new_val = cjson.encode(vendor)
        redis.call('SET', vendor_key, new_val)
        return {1, new_val}
    """,
    "apply_vendor_upgrade": """
        local vendor_key = KEYS[1]
        local slots = tonumber(ARGV[1])
        local now = ARGV[2]

        local raw = redis.call('GET', vendor_key)
        if not raw then
            return {2, ''}
        end
        local vendor = cjson.decode(raw)
        if vendor.pending_upgrade ~= true then
            return {5, raw}
        end
        if tonumber(vendor.pending_upgrade_slots) ~= slots then
            return {6, raw}
        end

        vendor.customer_limit = tonumber(vendor.customer_limit) + slots
        vendor.pending_upgrade = false
        vendor.pending_upgrade_slots = cjson.null
        vendor.pending_upgrade_amount = cjson.null
        vendor.pending_upgrade_reference = cjson.null
        vendor.updated_at = now
        local new_val = cjson.encode(vendor)
        redis.call('SET', vendor_key, new_val)
        return {1, new_val}
    """,
}

CUSTOMER_SCRIPTS = {
    "update_customer": """
        local customer_key = KEYS[1]
        local from_index_key = KEYS[2]
        local to_index_key = KEYS[3]
        local expected_version = tonumber(ARGV[1])
        local new_val = ARGV[2]
        local customer_id = ARGV[3]
        local score = tonumber(ARGV[4])

        local raw = redis.call('GET', customer_key)
        if not raw then
            return {2, ''}
        end
        local current = cjson.decode(raw)
        if tonumber(current.version) ~= expected_version then
            return {0, raw}
        end

        redis.call('SET', customer_key, new_val)
        if from_index_key ~= to_index_key then
            redis.call('ZREM', from_index_key, customer_id)
            redis.call('ZADD', to_index_key, score, customer_id)
        end
        return {1, new_val}
    """,
}

TOKEN_REQUEST_SCRIPTS = {
    "transition_token_request": """
        local request_key = KEYS[1]
        local from_status_key = KEYS[2]
        local to_status_key = KEYS[3]
        local vendor_from_status_key = KEYS[4]
        local vendor_to_status_key = KEYS[5]
        local reference_key = KEYS[6]
        local expected_version = tonumber(ARGV[1])
        local new_val = ARGV[2]
        local request_id = ARGV[3]
        local score = tonumber(ARGV[4])

        local raw = redis.call('GET', request_key)
        if not raw then
            return {2, ''}
        end
        local current = cjson.decode(raw)
        if tonumber(current.version) ~= expected_version then
            return {0, raw}
        end

        redis.call('SET', request_key, new_val)
        redis.call('ZREM', from_status_key, request_id)
        redis.call('ZREM', vendor_from_status_key, request_id)
        redis.call('ZADD', to_status_key, score, request_id)
        redis.call('ZADD', vendor_to_status_key, score, request_id)
        if reference_key ~= '' then
            redis.call('SET', reference_key, request_id)
        end
        return {1, new_val}
    """,
}

TOKEN_SCRIPTS = {
    "issue_token": """
        local request_key = KEYS[1]
        local request_token_key = KEYS[2]
        local token_key = KEYS[3]
        local meter_tokens_key = KEYS[4]
        local vendor_tokens_key = KEYS[5]
        local from_status_key = KEYS[6]
        local to_status_key = KEYS[7]
        local vendor_from_status_key = KEYS[8]
        local vendor_to_status_key = KEYS[9]
        local expected_version = tonumber(ARGV[1])
        local request_json = ARGV[2]
        local token_json = ARGV[3]
        local request_id = ARGV[4]
        local token_id = ARGV[5]
        local request_score = tonumber(ARGV[6])
        local token_score = tonumber(ARGV[7])

        -- Insert-if-absent: at most one token per request
        local existing_id = redis.call('GET', request_token_key)
        if existing_id then
            local existing = redis.call('GET', 'token:' .. existing_id)
            return {4, existing or ''}
        end

        local raw = redis.call('GET', request_key)
        if not raw then
            return {2, ''}
        end
        local current = cjson.decode(raw)
        if tonumber(current.version) ~= expected_version then
            return {0, raw}
        end

        redis.call('SET', token_key, token_json)
        redis.call('SET', request_token_key, token_id)
        redis.call('ZADD', meter_tokens_key, token_score, token_id)
        redis.call('ZADD', vendor_tokens_key, token_score, token_id)
        redis.call('SET', request_key, request_json)
        redis.call('ZREM', from_status_key, request_id)
        redis.call('ZREM', vendor_from_status_key, request_id)
        redis.call('ZADD', to_status_key, request_score, request_id)
        redis.call('ZADD', vendor_to_status_key, request_score, request_id)
        return {1, token_json}
    """,
}

ACTIVITY_SCRIPTS = {
    "record_activity": """
        local feed_key = KEYS[1]
        local score = tonumber(ARGV[1])
        local entry = ARGV[2]
        local capacity = tonumber(ARGV[3])

        redis.call('ZADD', feed_key, score, entry)
        local size = redis.call('ZCARD', feed_key)
        if size > capacity then
            -- Lowest ranks are the oldest entries
            redis.call('ZREMRANGEBYRANK', feed_key, 0, size - capacity - 1)
            size = capacity
        end
        return {1, tostring(size)}
    """,
}

ALL_SCRIPTS = {
    **VENDOR_SCRIPTS,
    **CUSTOMER_SCRIPTS,
    **TOKEN_REQUEST_SCRIPTS,
    **TOKEN_SCRIPTS,
    **ACTIVITY_SCRIPTS,
}


def parse_script_result(result: Any) -> Tuple[int, Optional[str]]:
    """Split a ``[code, payload]`` script reply; empty payloads become None."""
    code = int(result[0]) if result and result[0] is not None and result[0] != "" else 0
    payload = result[1] if len(result) > 1 and result[1] and result[1] != "" else None
    return code, payload
