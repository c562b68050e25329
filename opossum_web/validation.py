from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from .settings import DFLT_FISHER_CUTOFF, DFLT_NUM_RESULTS, DFLT_ZSCORE_CUTOFF, AnalysisVariant, WebSettings

RESULT_TYPE_TOP = "top_x_results"
RESULT_TYPE_SIGNIFICANT = "significant_hits"


@dataclass
class JobRequest:
    variant: str
    email: str
    threshold: float
    collections: List[str]
    tax_groups: List[str]
    cluster_select_method: str
    seq_input_method: str
    bg_seq_input_method: str
    cluster_families: List[str] = field(default_factory=list)
    min_ic: Optional[float] = None
    anchor_tf_id: Optional[str] = None
    inter_binding_dist: Optional[int] = None
    result_type: Optional[str] = None
    num_display_results: Optional[str] = None
    zscore_cutoff: Optional[str] = None
    fisher_cutoff: Optional[str] = None
    result_sort_by: Optional[str] = None
    user_tf_family_file: Optional[str] = None
    user_seq_file: Optional[str] = None
    user_bg_seq_file: Optional[str] = None
    bg_seq_set_key: Optional[str] = None
    bg_seq_set_name: Optional[str] = None


def _form_value(form: Mapping[str, Any], key: str) -> str:
    value = form.get(key)
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    return str(value).strip() if value is not None else ""


def _form_list(form: Mapping[str, Any], key: str) -> List[str]:
    getlist = getattr(form, "getlist", None)
    if callable(getlist):
        raw = getlist(key)
    else:
        raw = form.get(key)
        if raw is None:
            raw = []
        elif not isinstance(raw, (list, tuple)):
            raw = [raw]

    values: List[str] = []
    for item in raw:
        # Multi-selects sometimes arrive as one comma separated value.
        for part in str(item).split(","):
            part = part.strip()
            if part:
                values.append(part)
    return values


def upload_basename(filename: Optional[str]) -> Optional[str]:
    if not filename:
        return None
    name = re.sub(r".*[\\/]", "", filename)
    return name or None


def _upload_name(files: Optional[Mapping[str, Any]], form: Mapping[str, Any], key: str) -> Optional[str]:
    upload = files.get(key) if files is not None else None
    filename = getattr(upload, "filename", None) if upload is not None else None
    if not filename:
        filename = _form_value(form, key)
    return upload_basename(filename)


def format_number(value: float) -> str:
    return f"{value:g}"


def validate_job_request(
    form: Mapping[str, Any],
    variant: AnalysisVariant,
    settings: WebSettings,
    files: Optional[Mapping[str, Any]] = None,
) -> Tuple[Optional[JobRequest], List[str]]:
    """Check a submitted analysis form.

    Returns ``(request, [])`` on success or ``(None, errors)`` with every
    problem found, in the order the form presents the fields.
    """
    errors: List[str] = []

    inter_binding_dist: Optional[int] = None
    if variant.anchored:
        raw_dist = _form_value(form, "inter_binding_dist")
        if not raw_dist:
            inter_binding_dist = settings.dflt_inter_binding_dist
        else:
            try:
                inter_binding_dist = int(raw_dist)
            except ValueError:
                errors.append("Inter-binding distance must be an integer")
            else:
                if inter_binding_dist > settings.max_inter_binding_dist:
                    errors.append(
                        "Specified inter-binding distance exceeds maximum of %d allowed"
                        % settings.max_inter_binding_dist
                    )
                elif inter_binding_dist < 0:
                    errors.append("Inter-binding distance must not be negative")

    email = _form_value(form, "email")
    if not email:
        errors.append("Please provide an e-mail address where your results will be mailed.")

    threshold: Optional[float] = None
    raw_threshold = _form_value(form, "threshold").rstrip("%")
    if not raw_threshold:
        errors.append("No TFBS profile matrix score threshold provided.")
    else:
        try:
            threshold = float(raw_threshold)
        except ValueError:
            errors.append("TFBS profile matrix score threshold must be a number")

    min_ic: Optional[float] = None
    raw_min_ic = _form_value(form, "tf_min_ic")
    if raw_min_ic:
        try:
            min_ic = float(raw_min_ic)
        except ValueError:
            errors.append("Minimum information content must be a number")

    tax_groups = _form_list(form, "tf_tax_groups") or list(settings.dflt_tax_groups)

    collections = _form_list(form, "tf_collections")
    if not collections:
        errors.append("No JASPAR collection selected")

    cluster_select_method = _form_value(form, "tf_cluster_select_method")
    cluster_families: List[str] = []
    user_tf_family_file: Optional[str] = None
    if not cluster_select_method:
        errors.append("No TFBS cluster selected")
    elif "specific" in cluster_select_method:
        cluster_families = _form_list(form, "tf_cluster_families")
        if not cluster_families:
            errors.append("No specific TFBS cluster families selected")
    elif cluster_select_method == "upload":
        user_tf_family_file = _upload_name(files, form, "tf_family_upload_file")

    anchor_tf_id: Optional[str] = None
    if variant.anchored:
        anchor_tf_id = _form_value(form, "anchor_tf_id") or None
        if not anchor_tf_id:
            errors.append("Anchoring TF not specified")

    seq_input_method = _form_value(form, "seq_input_method")
    if not seq_input_method:
        errors.append("No target sequences specified")

    bg_seq_input_method = _form_value(form, "bg_seq_input_method")
    if not bg_seq_input_method:
        errors.append("No background sequence specified")

    user_seq_file: Optional[str] = None
    if seq_input_method == "upload":
        user_seq_file = _upload_name(files, form, "seq_file")

    user_bg_seq_file: Optional[str] = None
    bg_seq_set_key: Optional[str] = None
    bg_seq_set_name: Optional[str] = None
    if bg_seq_input_method == "upload":
        user_bg_seq_file = _upload_name(files, form, "bg_seq_file")
    elif bg_seq_input_method == "default":
        bg_seq_set_key = _form_value(form, "bg_seq_set_key")
        bg_seq_set_name = settings.bg_seq_set_names.get(bg_seq_set_key)
        if bg_seq_set_name is None:
            errors.append("Unknown background sequence set %s" % (bg_seq_set_key or "(none)"))

    result_type = _form_value(form, "result_type") or None
    num_display_results: Optional[str] = None
    zscore_cutoff: Optional[str] = None
    fisher_cutoff: Optional[str] = None
    if result_type == RESULT_TYPE_TOP:
        num_display_results = _form_value(form, "num_display_results") or str(DFLT_NUM_RESULTS)
    elif result_type == RESULT_TYPE_SIGNIFICANT:
        zscore_cutoff = _form_value(form, "zscore_cutoff") or str(DFLT_ZSCORE_CUTOFF)
        fisher_cutoff = _form_value(form, "fisher_cutoff") or str(DFLT_FISHER_CUTOFF)

    if errors:
        return None, errors

    request = JobRequest(
        variant=variant.key,
        email=email,
        threshold=threshold,  # type: ignore[arg-type]
        collections=collections,
        tax_groups=tax_groups,
        cluster_select_method=cluster_select_method,
        cluster_families=cluster_families,
        seq_input_method=seq_input_method,
        bg_seq_input_method=bg_seq_input_method,
        min_ic=min_ic,
        anchor_tf_id=anchor_tf_id,
        inter_binding_dist=inter_binding_dist,
        result_type=result_type,
        num_display_results=num_display_results,
        zscore_cutoff=zscore_cutoff,
        fisher_cutoff=fisher_cutoff,
        result_sort_by=_form_value(form, "result_sort_by") or None,
        user_tf_family_file=user_tf_family_file,
        user_seq_file=user_seq_file,
        user_bg_seq_file=user_bg_seq_file,
        bg_seq_set_key=bg_seq_set_key,
        bg_seq_set_name=bg_seq_set_name,
    )
    return request, []
