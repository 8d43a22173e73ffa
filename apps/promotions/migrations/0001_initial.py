# Generated manually for Promotions App - BOGO Offer Engine

import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        # PromotionCampaign model
        migrations.CreateModel(
            name="PromotionCampaign",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(help_text="Internal campaign name", max_length=200)),
                ("slug", models.SlugField(help_text="URL-friendly identifier", max_length=100, unique=True)),
                ("description", models.TextField(blank=True)),
                ("start_date", models.DateTimeField(help_text="When campaign becomes active")),
                (
                    "end_date",
                    models.DateTimeField(blank=True, help_text="When campaign ends (null = no end)", null=True),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("active", "Active"),
                            ("paused", "Paused"),
                            ("completed", "Completed"),
                        ],
                        default="draft",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_promotion_campaigns",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Promotion Campaign",
                "verbose_name_plural": "Promotion Campaigns",
                "db_table": "promotion_campaigns",
                "ordering": ("-created_at",),
                "indexes": [
                    models.Index(fields=["status"], name="promotion_c_status_2d4f1b_idx"),
                    models.Index(fields=["start_date", "end_date"], name="promotion_c_start_d_8a1c3e_idx"),
                ],
            },
        ),
        # BogoOffer model
        migrations.CreateModel(
            name="BogoOffer",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                (
                    "buy_target_type",
                    models.CharField(
                        choices=[("product", "Specific Product"), ("category", "Product Category")], max_length=10
                    ),
                ),
                ("buy_target_id", models.CharField(help_text="External product/category id", max_length=64)),
                (
                    "buy_quantity",
                    models.PositiveIntegerField(
                        default=1, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                (
                    "get_target_type",
                    models.CharField(
                        choices=[("product", "Specific Product"), ("category", "Product Category")], max_length=10
                    ),
                ),
                ("get_target_id", models.CharField(help_text="External product/category id", max_length=64)),
                (
                    "get_quantity",
                    models.PositiveIntegerField(
                        default=1, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                (
                    "discount_mode",
                    models.CharField(
                        choices=[
                            ("free", "Free"),
                            ("percentage", "Percentage Off"),
                            ("fixed_amount", "Fixed Amount Off"),
                        ],
                        default="free",
                        max_length=20,
                    ),
                ),
                (
                    "discount_value",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Percentage (0-100) or fixed amount; ignored for free",
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                ("start_date", models.DateTimeField()),
                ("end_date", models.DateTimeField()),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("inactive", "Inactive")], default="inactive", max_length=10
                    ),
                ),
                (
                    "usage_limit",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Maximum total redemptions (null = unlimited)",
                        null=True,
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                ("usage_count", models.PositiveIntegerField(default=0, editable=False)),
                (
                    "deactivated_at",
                    models.DateTimeField(
                        blank=True, editable=False, help_text="Set when an admin switches the offer off", null=True
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "campaign",
                    models.ForeignKey(
                        blank=True,
                        help_text="Associated marketing campaign",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bogo_offers",
                        to="promotions.promotioncampaign",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_bogo_offers",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "BOGO Offer",
                "verbose_name_plural": "BOGO Offers",
                "db_table": "promotion_bogo_offers",
                "ordering": ("-created_at",),
                "indexes": [
                    models.Index(fields=["status"], name="promotion_b_status_5e9a7c_idx"),
                    models.Index(fields=["start_date", "end_date"], name="promotion_b_start_d_3f6b2d_idx"),
                    models.Index(fields=["status", "start_date", "end_date"], name="idx_bogo_offer_active"),
                    models.Index(fields=["buy_target_type", "buy_target_id"], name="idx_bogo_offer_buy_target"),
                    models.Index(fields=["get_target_type", "get_target_id"], name="idx_bogo_offer_get_target"),
                    models.Index(fields=["created_by"], name="promotion_b_created_7c2e4a_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("end_date__gt", models.F("start_date"))), name="bogo_offer_valid_dates"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("buy_quantity__gte", 1)), name="bogo_offer_buy_quantity_min"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("get_quantity__gte", 1)), name="bogo_offer_get_quantity_min"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("discount_value__gte", 0)), name="bogo_offer_discount_non_negative"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("usage_limit__isnull", True),
                            ("usage_count__lte", models.F("usage_limit")),
                            _connector="OR",
                        ),
                        name="bogo_offer_usage_within_limit",
                    ),
                ],
            },
        ),
        # BogoUsage ledger model
        migrations.CreateModel(
            name="BogoUsage",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "order_ref",
                    models.CharField(help_text="Order reference from the order subsystem", max_length=64),
                ),
                ("buy_product_id", models.CharField(max_length=64)),
                ("get_product_id", models.CharField(max_length=64)),
                ("buy_quantity", models.PositiveIntegerField()),
                ("get_quantity", models.PositiveIntegerField()),
                (
                    "discount_amount",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10),
                ),
                ("used_at", models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                (
                    "offer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="usages",
                        to="promotions.bogooffer",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bogo_usages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "BOGO Usage",
                "verbose_name_plural": "BOGO Usage",
                "db_table": "promotion_bogo_usage",
                "ordering": ("-used_at",),
                "indexes": [
                    models.Index(fields=["offer", "-used_at"], name="promotion_b_offer_i_9d1e6f_idx"),
                    models.Index(fields=["user"], name="promotion_b_user_id_4b8c0e_idx"),
                    models.Index(fields=["order_ref"], name="promotion_b_order_r_6a3d9b_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("offer", "order_ref"), name="unique_bogo_offer_per_order"),
                    models.CheckConstraint(
                        condition=models.Q(("discount_amount__gte", 0)), name="bogo_usage_discount_non_negative"
                    ),
                ],
            },
        ),
    ]
